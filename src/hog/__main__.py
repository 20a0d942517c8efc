from hog.cli import main

main()
