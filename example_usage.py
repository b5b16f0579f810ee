"""
Example usage of the promotion scraper.
"""

import asyncio
import json
from promo_scraper import BatchCoordinator, FieldSelectorMap, RecordExtractor, StaticDocument
from promo_scraper.logging_utils import configure_logging


SAMPLE_PAGE = """
<html><body>
  <div class="promo"><h3 class="title">20% off</h3><p class="desc">With Visa credit cards</p></div>
  <div class="promo"><h3 class="title">3x2 on drinks</h3><p class="desc">Every Thursday</p></div>
</body></html>
"""


async def example_1_batch():
    """Scrape a couple of pages end to end (needs OPENAI_API_KEY and Chromium)."""
    print("=" * 60)
    print("Example 1: Batch scrape")
    print("=" * 60)

    coordinator = BatchCoordinator()

    # Replace with actual promotion pages
    urls = ["https://example.com/promos", "https://example.com/bank-offers"]

    result = await coordinator.run(urls)
    print(f"\n✓ {len(result.promotions)} promotions in {result.execution_time_ms} ms")
    for error in result.errors:
        print(f"✗ {error}")
    print(json.dumps(result.as_response(), indent=2, ensure_ascii=False))


async def example_2_offline_extract():
    """Apply a known selector map to saved HTML, no browser or LLM involved."""
    print("\n" + "=" * 60)
    print("Example 2: Offline extraction")
    print("=" * 60)

    selectors = FieldSelectorMap(titulo=".title", descripcion=".desc")
    records = await RecordExtractor(selectors).extract(StaticDocument(SAMPLE_PAGE, url="file://sample"))
    for i, record in enumerate(records, 1):
        print(f"{i}. {json.dumps(record.as_wire(), ensure_ascii=False)}")


def main():
    """Run examples."""
    configure_logging()
    print("Promotion Scraper - Example Usage\n")
    print("Set OPENAI_API_KEY and run `playwright install chromium` before example 1\n")

    asyncio.run(example_2_offline_extract())
    # asyncio.run(example_1_batch())


if __name__ == "__main__":
    main()
