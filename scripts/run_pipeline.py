from __future__ import annotations

import subprocess
import sys


def main():
    subprocess.run(
        [sys.executable, "-m", "syndicate.entrypoints.cli", "Summarize what a tool-calling agent is", "--env", "offline"],
        check=True,
    )


if __name__ == "__main__":
    main()
