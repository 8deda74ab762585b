from pydantic import BaseModel

DEFAULT_MAJOR_PATTERN = r"(breaking|\+semver:major)"
DEFAULT_MINOR_PATTERN = r"(feature)"
DEFAULT_MAIN_BRANCH = "main"


class Settings(BaseModel):
    # repository
    repo_path: str = "."
    path_filter: str | None = None  # GITVER_PATH (git pathspec, e.g. "docs/")

    # classification
    major_pattern: str = DEFAULT_MAJOR_PATTERN  # GITVER_MAJOR_REGEX
    minor_pattern: str = DEFAULT_MINOR_PATTERN  # GITVER_MINOR_REGEX

    # branch context
    main_branch_name: str = DEFAULT_MAIN_BRANCH  # GITVER_MAIN_BRANCH

    # structured logging toggle
    structured_logging: bool = True  # GITVER_STRUCT_LOG ("0" to disable)

    # simple bearer auth token for the /version endpoint
    auth_token: str | None = None  # GITVER_AUTH_TOKEN
