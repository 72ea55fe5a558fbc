from mpdeck.cli import main

main()
