"""Entry point for 'python -m rolegate'."""

from rolegate.cli import main

if __name__ == "__main__":
    main()
