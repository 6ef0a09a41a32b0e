"""
Schedule Engine CLI - Main entry point.
Built with Click for a rich command-line interface.
"""

import json
from datetime import date, timedelta

import click
from rich.console import Console
from rich.table import Table

from schedule_engine import __version__

console = Console()

PRIORITY_STYLES = {
    'high': '[red]high[/red]',
    'medium': '[yellow]medium[/yellow]',
    'low': '[green]low[/green]',
}


def load_config(config_path):
    """Load engine configuration and set up logging."""
    from schedule_engine.config import EngineConfig
    from schedule_engine.logging_config import setup_logging

    config = EngineConfig.from_yaml(config_path)
    setup_logging(config.log_level, config.log_file)
    return config


def load_engine(config_path, data_path):
    """Build an engine over a snapshot file."""
    from schedule_engine.datasource import InMemoryDataSource, ScheduleDataError
    from schedule_engine.engine import ScheduleEngine

    config = load_config(config_path)
    try:
        source = InMemoryDataSource.from_file(data_path, config)
    except ScheduleDataError as e:
        raise click.ClickException(str(e))
    return ScheduleEngine(source, config)


def parse_day(value):
    """Parse a --date option (default today)."""
    from common.date_utils import parse_date_string

    if not value:
        return date.today()
    try:
        return parse_date_string(value)
    except ValueError:
        raise click.BadParameter(f"'{value}' is not a YYYY-MM-DD date", param_hint='--date')


@click.group()
@click.version_option(version=__version__, prog_name='schedule-engine')
@click.option('--config', '-c', default=None,
              help='Path to engine config file (default: config/engine.yaml)')
@click.pass_context
def cli(ctx, config):
    """Maintenance Task Scheduler - Preview daily service and check tasks."""
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config


# =============================================================================
# Tasks Commands
# =============================================================================

@cli.group()
def tasks():
    """Inspect generated tasks."""
    pass


@tasks.command('show')
@click.option('--data', '-d', 'data_path', required=True, type=click.Path(),
              help='Snapshot file (YAML or JSON) with properties, units, bookings, ...')
@click.option('--date', 'day', default=None, help='Date to schedule (YYYY-MM-DD, default today)')
@click.option('--property', '-p', 'property_id', default=None, help='Property id (default: all)')
@click.option('--json', 'as_json', is_flag=True, help='Print JSON instead of a table')
@click.pass_context
def show_tasks(ctx, data_path, day, property_id, as_json):
    """Show the task list for a date."""
    from schedule_engine.utils import format_time

    target_day = parse_day(day)
    engine = load_engine(ctx.obj['config_path'], data_path)
    result = engine.generate(target_day, property_id)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    table = Table(title=f"Tasks for {target_day.isoformat()}")
    table.add_column("Time", style="cyan")
    table.add_column("Priority")
    table.add_column("Property", style="blue")
    table.add_column("Target", style="green")
    table.add_column("Task", style="magenta")
    table.add_column("Occupied")

    for task in result.tasks:
        target = task.plant_room_name if task.plant_room_id else task.unit_name
        kind = task.service_type if task.service_type else task.type.value
        table.add_row(
            format_time(task.scheduled_time),
            PRIORITY_STYLES.get(task.priority.value, task.priority.value),
            task.property_name,
            target or 'N/A',
            kind,
            "Yes" if task.is_occupied else "",
        )

    console.print(table)
    console.print(
        f"[green]{len(result.tasks)} tasks[/green] "
        f"({result.duplicates_removed} duplicates removed)"
    )


# =============================================================================
# Rules Commands
# =============================================================================

@cli.group()
def rules():
    """Inspect property scheduling rules."""
    pass


@rules.command('preview')
@click.option('--data', '-d', 'data_path', required=True, type=click.Path(),
              help='Snapshot file (YAML or JSON)')
@click.option('--property', '-p', 'property_id', required=True, help='Property id')
@click.option('--start', 'start', default=None, help='First date (YYYY-MM-DD, default today)')
@click.option('--days', '-n', default=7, show_default=True, help='Number of days to preview')
@click.pass_context
def preview_rules(ctx, data_path, property_id, start, days):
    """Show which units each rule picks over the coming days."""
    from schedule_engine.frequency import matches_frequency
    from schedule_engine.utils import describe_frequency

    first_day = parse_day(start)
    engine = load_engine(ctx.obj['config_path'], data_path)

    prop = next((p for p in engine.data_source.get_properties() if p.id == property_id), None)
    if prop is None:
        raise click.ClickException(f"Property not found: {property_id}")

    units = engine.data_source.get_units(prop.id)
    rule_engine = engine.rule_engine
    active = rule_engine.active_rules(engine.data_source.get_property_rules(prop.id))

    if not active:
        console.print(f"[yellow]No active rules for {prop.name}[/yellow]")
        return

    for rule in active:
        pool = rule_engine.candidate_pool(rule, units)
        console.print(
            f"\n[bold]{rule.rule_name or rule.id}[/bold] "
            f"({describe_frequency(rule.config.frequency)}, "
            f"{rule_engine.selection_count(rule)} of {len(pool)} units)"
        )
        table = Table()
        table.add_column("Date", style="cyan")
        table.add_column("Selected", style="green")

        for offset in range(days):
            day = first_day + timedelta(days=offset)
            if not pool or not matches_frequency(rule.config.frequency, day):
                table.add_row(day.isoformat(), "[dim]-[/dim]")
                continue
            chosen = rule_engine.select_units(prop.id, day, pool, rule_engine.selection_count(rule))
            table.add_row(day.isoformat(), ', '.join(u.name or u.id for u in chosen))

        console.print(table)


# =============================================================================
# Config Commands
# =============================================================================

@cli.group('config')
def config_group():
    """Inspect engine configuration."""
    pass


@config_group.command('show')
@click.pass_context
def show_config(ctx):
    """Show the effective engine configuration."""
    config = load_config(ctx.obj['config_path'])

    table = Table(title="Engine Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    for key, value in config.to_dict().items():
        if isinstance(value, list):
            value = ', '.join(value)
        table.add_row(key, str(value) if value is not None else 'N/A')

    console.print(table)


def main():
    """Main entry point."""
    cli()


if __name__ == '__main__':
    main()
