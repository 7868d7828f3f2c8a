from remind_at.cli import main

main()
