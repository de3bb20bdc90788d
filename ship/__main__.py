from ship.cli.app import main

main()
