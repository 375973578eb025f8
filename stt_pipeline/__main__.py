"""Package entry point for ``python -m stt_pipeline``.

Delegates to the CLI's main(); see stt_pipeline.cli for the subcommands.
"""

from stt_pipeline.cli import main

if __name__ == "__main__":
    main()
