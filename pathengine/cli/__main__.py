from pathengine.cli.main import main

main()
