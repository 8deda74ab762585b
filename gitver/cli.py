import logging
import sys

import click

from .config import DEFAULT_MAIN_BRANCH, DEFAULT_MAJOR_PATTERN, DEFAULT_MINOR_PATTERN, Settings
from .errors import GitVersionError
from .version import compute_version

logger = logging.getLogger("gitver")


def _setup_logging(verbose: bool) -> None:
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-r", "--repo", default=".", show_default=True, envvar="GITVER_REPO",
              help="Path to the git repository.")
@click.option("-p", "--path", "path_filter", default=None, envvar="GITVER_PATH",
              help="Only count commits that change files under this path.")
@click.option("--major-regex", default=DEFAULT_MAJOR_PATTERN, show_default=True,
              envvar="GITVER_MAJOR_REGEX", help="Commit message pattern for a major bump.")
@click.option("--minor-regex", default=DEFAULT_MINOR_PATTERN, show_default=True,
              envvar="GITVER_MINOR_REGEX", help="Commit message pattern for a minor bump.")
@click.option("--main-branch-name", default=DEFAULT_MAIN_BRANCH, show_default=True,
              envvar="GITVER_MAIN_BRANCH", help="Branch whose checkout yields a plain release version.")
@click.option("-v", "--verbose", is_flag=True, help="Log debug details to stderr.")
@click.version_option(package_name="gitver")
def main(repo, path_filter, major_regex, minor_regex, main_branch_name, verbose):
    """Print the semantic version of the repository's current checkout."""
    _setup_logging(verbose)
    settings = Settings(
        repo_path=repo,
        path_filter=path_filter,
        major_pattern=major_regex,
        minor_pattern=minor_regex,
        main_branch_name=main_branch_name,
    )
    try:
        report = compute_version(settings)
    except GitVersionError as e:
        click.echo(f"error: {e}", err=True)
        sys.exit(1)
    click.echo(str(report.version))


if __name__ == "__main__":
    main()
