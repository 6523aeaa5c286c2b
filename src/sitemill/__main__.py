from sitemill._cli import main

main()
