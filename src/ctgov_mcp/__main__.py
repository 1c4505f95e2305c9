from ctgov_mcp.server import main

main()
