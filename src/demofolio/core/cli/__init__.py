"""Demofolio CLI: seed users, link demo accounts, and print read models as JSON."""

import click

from demofolio import __version__


@click.group()
@click.version_option(version=__version__, package_name="demofolio")
@click.option("--config", "config_file", type=click.Path(dir_okay=False), help="YAML or JSON config file.")
@click.option("--data-dir", type=click.Path(file_okay=False), help="Base data directory.")
@click.option("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR.")
@click.option("--now", "now_text", default=None, help="ISO-8601 timestamp to generate data for (default: now).")
@click.pass_context
def main(ctx: click.Context, config_file, data_dir, log_level, now_text) -> None:
    """Demofolio: deterministic demo portfolio data."""
    ctx.ensure_object(dict)
    ctx.obj.update(config_file=config_file, data_dir=data_dir, log_level=log_level, now_text=now_text)


# Register subcommands (lazy imports keep startup fast)
from .link_cmd import link
from .report_cmd import institutions, performance, rankings, summary
from .seed_cmd import seed

main.add_command(seed)
main.add_command(link)
main.add_command(summary)
main.add_command(performance)
main.add_command(rankings)
main.add_command(institutions)
