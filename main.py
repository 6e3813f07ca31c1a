import asyncio
from nearswap.server import main as run_server

def main():
    """Launch the NEAR Intent Swaps MCP Server"""
    asyncio.run(run_server())

if __name__ == "__main__":
    main()
