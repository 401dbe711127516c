"""Allow ``python -m savings_account``."""
from .cli import main

if __name__ == "__main__":
    main()
