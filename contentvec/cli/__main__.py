"""Allow ``python -m contentvec.cli`` execution."""

from contentvec.cli.manage import main

main()
