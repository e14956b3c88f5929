"""Allow ``python -m zombiesoverlay``."""

from zombiesoverlay.standalone import main

if __name__ == "__main__":
    main()
