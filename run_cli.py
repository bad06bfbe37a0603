import sys

import typer

import cli.cli

if __name__ == "__main__":
    # Default to printing the plan for a local profile when no arguments are given
    if len(sys.argv) == 1:
        sys.argv = ["run_cli.py", "plan", "--profile", "profile.json"]
    # Access app attribute - it's a Typer instance defined in cli.cli module
    typer_app: typer.Typer = cli.cli.app
    typer_app()
