import copy
from datetime import date

import pytest

from schedule_engine.config import EngineConfig
from schedule_engine.models import Property

# 2025-06-01 is a Sunday
SUNDAY = date(2025, 6, 1)
MONDAY = date(2025, 6, 2)
TUESDAY = date(2025, 6, 3)
THURSDAY = date(2025, 6, 5)

SNAPSHOT = {
    'properties': [
        {'id': 'p1', 'name': 'Palm Resort'},
        {'id': 'p2', 'name': 'Coral Villas'},
    ],
    'technicians': [
        {'id': 't1', 'first_name': 'Ana', 'last_name': 'Silva', 'role': 'technician'},
        {'id': 't2', 'first_name': 'Ben', 'last_name': None, 'role': 'Staff'},
        {'id': 't3', 'first_name': 'Cara', 'last_name': 'Lee', 'role': 'admin'},
    ],
    'units': [
        {'id': 'u1', 'property_id': 'p1', 'name': 'Villa 1 Spa', 'unit_type': 'villa_spa',
         'water_type': 'hot', 'service_frequency': 'weekly'},
        {'id': 'u2', 'property_id': 'p1', 'name': 'Villa 2 Spa', 'unit_type': 'villa_spa',
         'water_type': 'hot', 'service_frequency': 'custom'},
        {'id': 'u3', 'property_id': 'p1', 'name': 'Main Pool', 'unit_type': 'main_pool',
         'water_type': 'chlorine', 'service_frequency': 'daily'},
        {'id': 'u4', 'property_id': 'p1', 'name': 'Closed Spa', 'unit_type': 'villa_spa',
         'service_frequency': 'daily', 'is_active': False},
        {'id': 'u5', 'property_id': 'p2', 'name': 'Lagoon', 'unit_type': 'main_pool',
         'service_frequency': 'daily'},
    ],
    'bookings': [
        {'id': 'b1', 'unit_id': 'u2', 'check_in_date': '2025-06-02', 'check_out_date': '2025-06-05'},
    ],
    'custom_schedules': [
        {
            'unit_id': 'u2',
            'schedule_type': 'simple',
            'schedule_config': {
                'frequency': 'daily_when_occupied',
                'service_type': 'test_only',
                'time_preference': '08:00',
                'occupancy_rules': {'on_arrival': True},
            },
            'service_types': {'daily': ['full_service']},
        },
    ],
    'property_rules': [
        {
            'id': 'r1',
            'property_id': 'p1',
            'rule_type': 'random_selection',
            'rule_name': 'Pool rotation',
            'rule_config': {
                'frequency': 'daily',
                'selection_count': 1,
                'time_preference': '10:00',
                'target_unit_types': ['main_pool'],
            },
        },
    ],
    'plant_rooms': [
        {'id': 'pr1', 'property_id': 'p1', 'name': 'Plant Room A', 'check_frequency': 'daily'},
    ],
    'equipment': [
        {'id': 'e1', 'property_id': 'p1', 'name': 'Chlorinator', 'maintenance_frequency': 'weekly',
         'maintenance_scheduled': True, 'measurement_config': {'unit': 'ppm'}},
        {'id': 'e2', 'property_id': 'p1', 'name': 'Heater', 'maintenance_frequency': 'daily',
         'maintenance_scheduled': False, 'measurement_config': {'unit': 'C'}},
    ],
}


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig()


@pytest.fixture
def prop() -> Property:
    return Property(id='p1', name='Palm Resort')


@pytest.fixture
def snapshot() -> dict:
    return copy.deepcopy(SNAPSHOT)
