"""Discovery, tag resolution and database access used by the importer."""
