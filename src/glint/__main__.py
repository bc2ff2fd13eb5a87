from glint._cli import main

main()
