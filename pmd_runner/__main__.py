from pmd_runner.cli import cli

cli(prog_name="pmd-runner")
