# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""``python -m scalebox`` and the ``scalebox`` console script."""

from __future__ import annotations

import importlib.util
import sys

_MISSING_CLI_EXTRA = (
    "The scalebox command needs the optional 'cli' dependencies.\n"
    "Install them with:  pip install 'scalebox-client[cli]'"
)


def main(argv: list[str] | None = None) -> None:
    """Run the CLI on ``argv`` (default: the process arguments)."""
    if importlib.util.find_spec("click") is None:
        sys.exit(_MISSING_CLI_EXTRA)

    from scalebox.cli import cli

    cli.main(args=argv, prog_name="scalebox")


if __name__ == "__main__":
    main()
