from src.services.graph_builder import GraphBuilder
from src.services.query_processor import QueryProcessor, build_query_index
from src.services.record_parser import parse_records

__all__ = ["GraphBuilder", "QueryProcessor", "build_query_index", "parse_records"]
