"""Allow running as ``python -m hotreload_sentinel``."""

from hotreload_sentinel.cli import cli

if __name__ == "__main__":
    cli(prog_name="hotreload-sentinel")
