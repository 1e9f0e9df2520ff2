from userstore.cli import main

main()
