"""Module entrypoint for ``python -m starterview``.

All argument parsing and runtime setup happen in ``starterview.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
