DIST_NAME = "datahub-mcp"
