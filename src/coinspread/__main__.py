# src/coinspread/__main__.py
from coinspread.app import main

if __name__ == "__main__":
    main()
