"""Central .env loader. Every entry point imports this first."""
from pathlib import Path
from dotenv import load_dotenv

# Load the .env at the project root; real environment variables win
_env_path = Path(__file__).resolve().parent / ".env"
load_dotenv(_env_path, override=False)
