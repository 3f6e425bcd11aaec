from siteserve.cli import cli

cli()
