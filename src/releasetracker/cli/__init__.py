def main() -> None:
    """CLI entrypoint for the releasetracker console script."""
    from releasetracker.cli.app import app

    app()
