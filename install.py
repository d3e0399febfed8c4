#!/usr/bin/env python
"""Installation script to create virtual environment and install package."""

import os
import sys
import subprocess
import platform
import shutil

def run_command(cmd, description):
    """Run a command and handle errors."""
    print(f"\n{'='*60}")
    print(f"[*] {description}")
    print(f"{'='*60}")
    try:
        result = subprocess.run(cmd, shell=True, check=True)
        if result.returncode == 0:
            print(f"[OK] {description} - Success!")
        return result.returncode
    except subprocess.CalledProcessError:
        print(f"[ERR] {description} - Failed!")
        sys.exit(1)

def main():
    print("\n" + "="*60)
    print("[SETUP] Media Tracker - One-Time Setup")
    print("="*60)

    is_windows = platform.system() == "Windows"

    if os.path.exists(".venv"):
        print("\n[*] Removing existing virtual environment...")
        shutil.rmtree(".venv")

    print("\n[1/2] Creating virtual environment...")
    venv_cmd = "py -m venv .venv" if is_windows else "python3 -m venv .venv"
    run_command(venv_cmd, "Create virtual environment")

    print("\n[2/2] Installing package...")
    python = ".venv\\Scripts\\python.exe" if is_windows else "./.venv/bin/python"
    run_command(f"{python} -m pip install -e .[test]", "Install package and dependencies")

    print("\n" + "="*60)
    print("[OK] Setup Complete!")
    print("="*60)
    print("\n[NEXT] What to do now:")
    print("\n1. Create the config file:")
    print("   copy config.example.yaml data\\config.yaml" if is_windows else "   cp config.example.yaml data/config.yaml")
    print("\n2. Add your provider API keys (optional, placeholders are used otherwise):")
    print("   GOOGLE_BOOKS_API_KEY, OMDB_API_KEY, RAWG_API_KEY, SEMANTIC_SCHOLAR_API_KEY")
    print("\n3. Run commands:")
    print('   media-tracker add "Dune" --type book --start 2024-01-01 --finish 2024-02-01 --rating 9')
    print('   media-tracker add-pending "Elden Ring" --type game --hype 9')
    print("   media-tracker repair-covers --dry-run")
    print("   media-tracker serve --port 8080")
    print("\n" + "="*60 + "\n")

if __name__ == "__main__":
    main()
