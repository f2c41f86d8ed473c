"""
CLI Utilities

Project directory discovery.
"""

import os
from pathlib import Path
from typing import Optional, Union

from staticdeploy.constants import PROJECT_HOME_ENV


def get_project_root(project_dir: Optional[Union[str, Path]] = None) -> Path:
    """
    Resolve the deployment project directory.

    Order: explicit --project-dir, then $STATICDEPLOY_HOME, then the
    current working directory.

    Returns:
        Absolute path of the project directory
    """
    if project_dir:
        return Path(project_dir).expanduser().resolve()

    home = os.environ.get(PROJECT_HOME_ENV)
    if home:
        return Path(home).expanduser().resolve()

    return Path.cwd().resolve()
