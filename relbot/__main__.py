from relbot.cli.app import main

main()
