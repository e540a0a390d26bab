from claimsync.ui.cli import run

run()
