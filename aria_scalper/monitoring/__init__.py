"""SQLite trade journal and the JSON metrics dashboard."""