import sys

from datahub_mcp.server import app


def main():
    """Main entry point for the datahub-mcp command."""
    print("Starting DataHub MCP Server. Use the --enable-write-tools flag to enable write tools.", file=sys.stderr)
    app()


if __name__ == "__main__":
    main()
