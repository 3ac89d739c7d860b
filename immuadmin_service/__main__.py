"""Entry point for running via `python -m immuadmin_service`."""

from .cli import main

if __name__ == "__main__":
    main()
