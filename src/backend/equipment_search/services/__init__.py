"""Domain services - normalization, search, embeddings, catalog, configuration"""
