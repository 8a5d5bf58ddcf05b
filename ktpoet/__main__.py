from ktpoet.cli import main

main()
