from qa_snapshot.models import Screenshot


async def scroll_to_bottom(page, pause_ms: int = 50) -> None:
    """Step through the page once so lazily loaded content is rendered."""
    dimensions = await page.evaluate("""() => {
        return {
            height: document.documentElement.scrollHeight,
            viewportHeight: window.innerHeight
        }
    }""")
    step = max(int(dimensions["viewportHeight"]), 1)
    current_position = 0
    while current_position < dimensions["height"]:
        await page.evaluate(f"window.scrollTo(0, {current_position})")
        await page.wait_for_timeout(pause_ms)
        current_position += step
    await page.evaluate("window.scrollTo(0, 0)")
    await page.wait_for_timeout(pause_ms)


async def shoot(page, full_page: bool = True) -> Screenshot:
    """Capture the page once; frames are part of the same bitmap."""
    if full_page:
        await scroll_to_bottom(page)
    data = await page.screenshot(full_page=full_page, type="png")
    return Screenshot.from_png(data)
