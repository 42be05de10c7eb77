"""Package entry point for ``python -m tgrelay``.

Delegates to the CLI: ``python -m tgrelay convert``, ``run`` or ``serve``.
"""

from tgrelay.cli import main

if __name__ == "__main__":
    main()
