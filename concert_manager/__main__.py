from concert_manager.cli import main

main()
