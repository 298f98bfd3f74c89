"""Storage interface with file, SQLite and key-value backends."""