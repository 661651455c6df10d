"""
Tests for the archinsight analyzer.
"""
