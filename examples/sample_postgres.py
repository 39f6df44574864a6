from dotenv import load_dotenv
import os

from sqlaccess import Database


def main():
    # Load environment variables from .env file
    load_dotenv()

    # Build connection string from environment variables
    db_host = os.getenv('DB_HOST')
    db_port = os.getenv('DB_PORT')
    db_name = os.getenv('DB_NAME')
    db_user = os.getenv('DB_USER')
    db_password = os.getenv('DB_PASSWORD')

    connection_string = f"postgresql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"

    # keep_alive reuses one connection for the whole session
    with Database(connection_string, keep_alive=True) as db:
        print("Creating table 'sample_users'...")
        db.execute("CREATE TABLE IF NOT EXISTS sample_users (id SERIAL PRIMARY KEY, name TEXT NOT NULL, age INTEGER)")

        print("Inserting sample data...")
        for name, age in [("Alice", 30), ("Bob", 25), ("Charlie", 35)]:
            db.execute("INSERT INTO sample_users (name, age) VALUES (@name, @age)", {"name": name, "age": age})

        names = db.fetch_all("SELECT name FROM sample_users WHERE name IN (@0) ORDER BY name", ["Alice", "Bob"], as_type=str)
        print(f"Selected: {names}")

        print("Calling a procedure with an INOUT parameter...")
        db.execute(
            "CREATE OR REPLACE PROCEDURE count_users(INOUT total BIGINT) LANGUAGE plpgsql AS $$ "
            "BEGIN SELECT COUNT(*) INTO total FROM sample_users; END $$"
        )
        result = db.call_procedure("count_users", {"_total": 0})
        print(f"Users: {result['total']}")

        print("Dropping table 'sample_users'...")
        db.execute("DROP PROCEDURE IF EXISTS count_users")
        db.database_tools.drop_table("sample_users")

if __name__ == "__main__":
    main()
