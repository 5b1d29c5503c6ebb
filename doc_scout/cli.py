# === FILE: doc_scout/cli.py ===
#!/usr/bin/env python3
"""
Command-line entry point of DocScout.

Commands:
  crawl     Crawl a documentation site and write the pages to disk
  config    Print the effective configuration

Global options:
  --config PATH       YAML/JSON configuration file (optional)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Log file (stdout only when omitted)
  --log-format FORMAT Logging format string

crawl options override the matching configuration keys:
  --root-url URL --max-depth N --max-pages N --output-dir DIR
  --format markdown|text|json --layout single|per-page --hierarchical
  --dedupe/--no-dedupe --quality --user-agent-list FILE --timeout SEC

Example:
  doc_scout --log-level DEBUG crawl --root-url https://docs.example.com --max-depth 2 --quality
"""
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
from click.core import ParameterSource
from pydantic import ValidationError

from doc_scout import __version__
from doc_scout.config import ScraperConfig, load_config
from doc_scout.engine import run_crawl
from doc_scout.errors import DocScoutError
from doc_scout.logger import DEFAULT_FORMAT, init_logging
from doc_scout.report import write_output

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def read_user_agents(path: Path) -> List[str]:
    """One user agent per line; blank lines and ``#`` comments are skipped."""
    agents = []
    for line in path.read_text(encoding='utf-8').splitlines():
        line = line.strip()
        if line and not line.startswith('#'):
            agents.append(line)
    return agents


def build_config(config_path: Optional[Path], overrides: Dict[str, Any]) -> ScraperConfig:
    try:
        return load_config(config_path, **overrides)
    except ValidationError as e:
        print_error(f'Invalid configuration:\n{e}')
    except (OSError, ValueError, TypeError) as e:
        print_error(f'Failed to load configuration: {e}')


def _given(ctx, name: str) -> bool:
    return ctx.get_parameter_source(name) == ParameterSource.COMMANDLINE


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='DocScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Path to a YAML or JSON configuration file.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'], case_sensitive=False),
    help='Logging level'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Log file (stdout when omitted)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Logging format string'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """DocScout: crawl a documentation site into Markdown, text or JSON."""
    init_logging(
        level=log_level.upper(),
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.option('--root-url', '-u', 'root_url', default=None, help='Entry point of the crawl')
@click.option('--max-depth', '-d', 'max_depth', type=click.IntRange(min=0), default=None,
              help='Maximum number of hops from the root')
@click.option('--max-pages', '-l', 'max_pages', type=click.IntRange(min=1), default=None,
              help='Stop after this many admitted pages')
@click.option('--output-dir', '-o', 'output_dir', default=None,
              type=click.Path(file_okay=False, path_type=Path), help='Output directory')
@click.option('--format', '-f', 'fmt', default=None,
              type=click.Choice(['markdown', 'text', 'json']), help='Output format')
@click.option('--layout', default=None, type=click.Choice(['single', 'per-page']),
              help='One document or one file per page')
@click.option('--hierarchical', is_flag=True, default=False,
              help='Order and nest the output by the URL hierarchy')
@click.option('--dedupe/--no-dedupe', 'dedupe', default=True,
              help='Canonical-URL duplicate suppression (on by default)')
@click.option('--quality', is_flag=True, default=False, help='Reject low-quality pages')
@click.option('--user-agent-list', 'user_agent_list', default=None,
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='File with one user agent per line')
@click.option('--timeout', 'timeout', type=click.FloatRange(min=0, min_open=True), default=None,
              help='Stop enqueuing new pages after this many seconds')
@click.pass_context
def crawl(ctx, root_url, max_depth, max_pages, output_dir, fmt, layout, hierarchical,
          dedupe, quality, user_agent_list, timeout):
    """Crawl the site and write the admitted pages."""
    overrides: Dict[str, Any] = {
        'root_url': root_url,
        'max_depth': max_depth,
        'max_pages': max_pages,
        'enable_deduplication': dedupe if _given(ctx, 'dedupe') else None,
        'enable_quality_analysis': quality or None,
        'output': {
            'directory': output_dir,
            'format': fmt,
            'layout': layout,
            'hierarchical': hierarchical or None,
        },
    }
    if user_agent_list is not None:
        overrides['user_agents'] = read_user_agents(user_agent_list)

    cfg = build_config(ctx.obj.get('config_path'), overrides)
    click.echo(f'Crawling {cfg.root} (max depth {cfg.max_depth})')

    try:
        result = run_crawl(cfg, timeout=timeout)
    except DocScoutError as e:
        print_error(f'Crawl aborted: {e}')
    except Exception as e:
        print_error(f'Crawl failed: {e}')

    try:
        written = write_output(result, cfg)
    except (OSError, ValueError) as e:
        print_error(f'Failed to write output: {e}')

    stats = result.stats
    click.echo(f'Pages: {stats.admitted}')
    click.echo(f'Duplicates skipped: {stats.duplicates}')
    click.echo(f'Quality rejected: {stats.quality_rejected}')
    click.echo(f'Fetch errors: {stats.fetch_errors}')
    click.echo(f'Duration: {stats.duration:.2f}s')
    for path in written:
        click.echo(f'Wrote {path}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.option('--root-url', '-u', 'root_url', default=None, help='Entry point of the crawl')
@click.pass_context
def show_config(ctx, root_url):
    """Print the effective configuration as JSON."""
    cfg = build_config(ctx.obj.get('config_path'), {'root_url': root_url})
    click.echo(cfg.model_dump_json(indent=2))


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
