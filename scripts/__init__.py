import subprocess
import shutil
import os
import sys

def run_unit_tests():
    """Run unit tests in sqlaccess/tests."""
    print("Running unit tests...")
    result = subprocess.run([sys.executable, "-m", "pytest", "sqlaccess/tests"], check=False)
    sys.exit(result.returncode)

def run_integration_tests():
    """Run integration tests in tests/ (PostgreSQL tests skip unless DATABASE_URL is reachable)."""
    print("Running integration tests...")
    result = subprocess.run([sys.executable, "-m", "pytest", "tests"], check=False)
    sys.exit(result.returncode)

def run_all_tests():
    """Run all tests (unit + integration)."""
    print("Running all tests...")
    result = subprocess.run([sys.executable, "-m", "pytest"], check=False)
    sys.exit(result.returncode)

def clean_project():
    """Remove unnecessary folders like venv, __pycache__, and .pytest_cache."""
    folders_to_remove = [
        "venv",
        ".pytest_cache",
        "static/test-sqlite",
    ]

    for root, dirs, files in os.walk("."):
        if "__pycache__" in dirs:
            folders_to_remove.append(os.path.join(root, "__pycache__"))

    print("Cleaning up project...")
    for folder in set(folders_to_remove):
        if os.path.exists(folder):
            try:
                shutil.rmtree(folder)
                print(f"Removed: {folder}")
            except OSError as e:
                print(f"Failed to remove {folder}: {e}")

    print("Cleanup complete.")
