#!/usr/bin/env python3
"""
Setup script to create .env file for the user service.
Run this script and follow the prompts to configure your environment.
"""

from pathlib import Path

def create_env_file():
    """Interactive setup for .env file"""
    env_path = Path(".env")

    if env_path.exists():
        response = input(".env file already exists. Overwrite? (y/N): ")
        if response.lower() != 'y':
            print("Setup cancelled.")
            return

    print("=== User Service Environment Setup ===\n")

    print("1. RUNTIME")
    env = input("   Environment (development/production) [development]: ").strip() or "development"
    log_level = input("   Log level [INFO]: ").strip().upper() or "INFO"
    log_format = input("   Log format (human/json) [human]: ").strip().lower() or "human"

    print("\n2. STORAGE")
    database_path = input("   SQLite database path [data/app.db]: ").strip() or "data/app.db"

    print("\n3. CORS CONFIGURATION")
    cors_origins = input("   Allowed Origins [http://localhost:4200]: ").strip() or "http://localhost:4200"

    print("\n4. OPTIONAL SETTINGS")
    max_page_size = input("   Max Page Size [1000]: ").strip() or "1000"
    default_page_size = input("   Default Page Size [100]: ").strip() or "100"

    env_content = f"""# Runtime
ENV={env}
LOG_LEVEL={log_level}
LOG_FORMAT={log_format}

# Storage
DATABASE_PATH={database_path}
ENTITIES_FILE=config/entities.yaml

# HTTP
API_PREFIX=/api
CORS_ALLOW_ORIGINS={cors_origins}

# Pagination
GLOBAL_MAX_PAGE_SIZE={max_page_size}
DEFAULT_PAGE_SIZE={default_page_size}
"""

    with open(env_path, 'w') as f:
        f.write(env_content)

    print(f"\n✅ .env file created successfully!")
    print(f"📁 Location: {env_path.absolute()}")
    print("\n📋 Next steps:")
    print("   1. uvicorn userapi.main:app --reload")
    print("   2. Open http://localhost:8000/docs")

if __name__ == "__main__":
    create_env_file()
