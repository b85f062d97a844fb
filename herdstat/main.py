"""
herdstat: GitHub-style contribution graphs for open source communities

Entry point for the command line.
"""

import argparse
import logging
import sys

from herdstat.cli import display_repositories, display_summary
from herdstat.color_quantizer import ColorQuantizer
from herdstat.config import GraphSettings, load_settings, validate_config
from herdstat.contribution_calendar import Calendar
from herdstat.contribution_events import collect_contributions, collect_repositories
from herdstat.github_client import GitHubClient, GitHubClientError
from herdstat.heatmap_renderer import HeatmapRenderer, HeatmapRenderError
from herdstat.svg_writer import SvgWriteError, write_svg

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Command line flags; each overrides its environment variable and config key."""
    parser = argparse.ArgumentParser(
        prog="herdstat",
        description="Generates a GitHub-style heatmap to visualize contributions",
    )
    parser.add_argument(
        "-c", "--config", help="YAML config file (default is $HOME/.herdstat.yaml)"
    )
    parser.add_argument(
        "-r",
        "--repositories",
        nargs="+",
        metavar="REPO",
        help="owners or owner/repository pairs to analyze (HERDSTAT_REPOSITORIES)",
    )
    parser.add_argument("--until", help="last day shown in the graph, defaults to today (UTC)")
    parser.add_argument("--color", help="primary color as hex-encoded RGB, e.g. 39D352")
    parser.add_argument("--levels", type=int, help="number of color levels (5-255)")
    parser.add_argument(
        "-o", "--output-filename", dest="filename", help="name of the generated SVG file"
    )
    parser.add_argument(
        "--minify",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="minify the generated SVG document (HERDSTAT_MINIFY)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", default=None, help="enable verbose output"
    )
    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if verbose:
        logger.info("Verbose output enabled")


def render_contribution_graph(settings: GraphSettings, calendar: Calendar) -> str:
    """Render the aggregated calendar with the configured colors."""
    quantizer = ColorQuantizer(settings.color_scheme, settings.levels)
    return HeatmapRenderer(quantizer).render(calendar)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    print("herdstat - Contribution graph generator")
    print("-" * 50)

    # Validate configuration before touching the network
    try:
        settings = load_settings(
            args.config,
            repositories=args.repositories,
            last_date=args.until,
            color=args.color,
            levels=args.levels,
            filename=args.filename,
            minify=args.minify,
            verbose=args.verbose,
        )
        validate_config(settings)
    except ValueError as e:
        print(f"\nConfiguration Error:\n{e}")
        return 1

    configure_logging(settings.verbose)

    client = GitHubClient(settings.github_token)
    calendar = Calendar(settings.last_date)

    try:
        repositories = collect_repositories(client, settings.repositories)
        display_repositories(repositories)
        summary = collect_contributions(
            client, repositories, calendar, settings.commit_filters
        )
    except (GitHubClientError, ValueError) as e:
        print(f"\nError: {e}")
        return 1

    display_summary(summary, calendar)

    try:
        markup = render_contribution_graph(settings, calendar)
        path = write_svg(markup, settings.filename, minify=settings.minify)
    except (HeatmapRenderError, SvgWriteError) as e:
        print(f"\nError: {e}")
        return 1

    print(f"Contribution graph written to '{path}'")
    return 0


if __name__ == "__main__":
    sys.exit(main())
