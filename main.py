from camara.scraper.cli import main

if __name__ == "__main__":
    # Run from the repository root; ``--source`` picks the portal and the
    # CAMARA_* environment variables tune timeouts and delays.
    raise SystemExit(main())
