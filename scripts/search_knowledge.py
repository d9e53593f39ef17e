"""
Search the Knowledge Base

Builds the in-memory embedding index from the knowledge directory and prints
the top-K chunks for each query.

Usage:
    python scripts/search_knowledge.py "How do I reset my password?"

    # More results, different knowledge directory
    python scripts/search_knowledge.py "pricing" --top-k 5 --knowledge-dir docs/

    # Show the assembled context block
    python scripts/search_knowledge.py "pricing" --show-context
"""

import sys
import asyncio
import logging
import argparse
from pathlib import Path

from dotenv import load_dotenv

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.rag.config import get_rag_config
from src.rag.errors import RetrievalError
from src.rag.retriever import RetrievalService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Load environment
load_dotenv()


async def search(service: RetrievalService, query: str, top_k: int, show_context: bool):
    """Run one query and print the results."""
    print(f"\nQuery: '{query}'")
    print("-" * 80)

    result = await service.retrieve(query, top_k)

    if not result:
        print("No results found")
        return

    print(f"Found {len(result.chunks)} results:\n")

    for i, item in enumerate(result.chunks, 1):
        print(f"Result {i}:")
        print(f"  Score: {item.score:.3f}")
        print(f"  Source: {item.chunk.source_identity}")
        print(f"  Text: {item.chunk.text[:150]}...")
        print()

    if show_context:
        print(result.context)


async def run(args):
    config = get_rag_config()
    if args.knowledge_dir:
        config.knowledge_dir = args.knowledge_dir

    service = RetrievalService(config)
    index = await service.ensure_index()
    print("=" * 80)
    print(f"Index: {index.size} chunks, {index.dimensionality} dims ({index.model_identity})")
    print("=" * 80)

    for query in args.queries:
        await search(service, query, args.top_k or config.top_k, args.show_context)


def main():
    parser = argparse.ArgumentParser(description="Search the knowledge base")
    parser.add_argument("queries", nargs="+", help="Queries to run")
    parser.add_argument("--top-k", type=int, default=None, help="Results per query")
    parser.add_argument("--knowledge-dir", default=None, help="Knowledge directory")
    parser.add_argument("--show-context", action="store_true", help="Print the context block")
    args = parser.parse_args()

    try:
        asyncio.run(run(args))
    except RetrievalError as e:
        logger.error(f"Search failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
