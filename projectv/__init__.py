"""
Project V Backend - transcrição e resumo de áudio
"""
__version__ = "1.0.0"
