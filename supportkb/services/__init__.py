"""
Services shared by the pipeline and the API: database engine, model client, retrieval, chat.
"""
