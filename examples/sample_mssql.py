from dotenv import load_dotenv
import os

from sqlaccess import Database, DbEngine

def main():
    # Load environment variables from .env file
    load_dotenv()

    # Build connection string from environment variables
    db_host = os.getenv("MSSQL_HOST", "127.0.0.1")
    db_port = os.getenv("MSSQL_PORT", "1433")
    db_name = os.getenv("MSSQL_DB", "sqlaccess")
    db_user = os.getenv("MSSQL_USER", "sa")
    db_password = os.getenv("MSSQL_PASSWORD", "password")
    db_driver = os.getenv("MSSQL_DRIVER", "ODBC Driver 18 for SQL Server")

    connection_string = (
        f"mssql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"
        f"?driver={db_driver.replace(' ', '+')}&encrypt=no&trust_server_certificate=yes"
    )

    db = Database(connection_string, DbEngine.MSSQL)

    print("Creating table 'sample_orders'...")
    db.database_tools.drop_table("sample_orders")
    db.execute("CREATE TABLE sample_orders (id INT IDENTITY PRIMARY KEY, customer NVARCHAR(50), amount INT)")
    for customer, amount in [("Alice", 30), ("Bob", 25), ("Alice", 45)]:
        db.execute("INSERT INTO sample_orders (customer, amount) VALUES (@0, @1)", customer, amount)

    # SQL Server paging needs an ORDER BY; one is added when missing
    page = db.fetch_page(0, 2, "SELECT id, customer, amount FROM sample_orders", as_type=dict)
    print(f"Page: {page.items} (total {page.total_count})")

    print("Calling a procedure with an OUTPUT parameter...")
    db.execute("DROP PROCEDURE IF EXISTS order_total")
    db.execute(
        "CREATE PROCEDURE order_total @customer NVARCHAR(50), @total INT OUTPUT AS "
        "BEGIN SELECT @total = SUM(amount) FROM sample_orders WHERE customer = @customer; RETURN 0; END"
    )
    result = db.call_procedure("order_total", {"customer": "Alice", "_total": 0})
    print(f"Alice total: {result['total']} (return code {result.return_code})")

    db.execute("DROP PROCEDURE order_total")
    db.database_tools.drop_table("sample_orders")
    db.close()

if __name__ == "__main__":
    main()
