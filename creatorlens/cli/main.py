"""
Main CLI entry point for CreatorLens
"""

import click
from .videos import videos_group
from .import_csv import import_csv_command
from .kpis import kpis_group
from .followers import followers_group
from .ai import ai_group
from .brain import brain_group


@click.group()
@click.version_option(version='0.1.0')
def cli():
    """
    CreatorLens - TikTok analytics for a single creator

    Import TikTok Studio exports, track KPIs and followers, explore and
    score your videos, and generate content ideas from what works.
    """
    pass


# Register command groups
cli.add_command(videos_group)
cli.add_command(import_csv_command)
cli.add_command(kpis_group)
cli.add_command(followers_group)
cli.add_command(ai_group)
cli.add_command(brain_group)


if __name__ == '__main__':
    cli()
