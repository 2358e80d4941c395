"""Document chunking, embedding and retrieval"""
