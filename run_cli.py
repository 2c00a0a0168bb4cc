import sys

import typer

import cli.cli

if __name__ == "__main__":
    # Default to a short EMOM run with a reachability drop in the middle
    if len(sys.argv) == 1:
        sys.argv = ["run_cli.py", "simulate", "--mode", "EMOM", "--minutes", "2", "--drop-at", "20", "--restore-at", "40"]
    typer_app: typer.Typer = cli.cli.app
    typer_app()
