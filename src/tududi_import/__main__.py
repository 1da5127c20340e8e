from tududi_import.main import main

main()
