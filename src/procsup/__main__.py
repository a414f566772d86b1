"""Allow running procsup as a module: python -m procsup."""

from procsup.cli import main

if __name__ == "__main__":
    main()
