# ABOUTME: Allows running the analyzer with python -m keystroke_analytics
from .analyzer import main

if __name__ == "__main__":
    raise SystemExit(main())
