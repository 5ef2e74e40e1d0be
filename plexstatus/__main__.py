from plexstatus.main import main

main()
