"""
In-page inspection scripts

Every DOM access of the overflow detector happens in the two scripts
below, run through ``page.evaluate(script, arg)``. They return plain
JSON-compatible structures, so the Python side never touches DOM
objects and can be driven by recorded payloads in tests.

SLIDE_CENSUS_SCRIPT
    No argument. Returns::

        {
          "slides":   [{"index", "pageNumber", "active", "width", "height"}],
          "pathname": str,
          "hash":     str
        }

    ``pageNumber`` comes from ``data-slidev-no`` or a ``slidev-page-N``
    class and is null when neither is present.

ELEMENT_SNAPSHOT_SCRIPT
    Argument ``{slideIndex, exclude, hiddenClass, ancestorDepth,
    previewLength}``. Returns null when the slide index no longer exists,
    otherwise::

        {
          "frame":            {"left", "top", "right", "bottom", "width", "height"},
          "invalidSelectors": [str],
          "elements":         [record, ...]
        }

    Each record holds the element descriptor (tag, className, id, text,
    src), computed style (overflow, overflowX, overflowY, textOverflow,
    display, visibility, opacity), ``hiddenMarker``, the first
    ``ancestorDepth`` ancestors' opacity and visibility, client and
    scroll sizes, the bounding rect and, for elements with direct text,
    the rendered text extent ``textRect``. Excluded elements are returned
    as descriptor-only records with ``excluded: true`` and are never
    measured.
"""

SLIDE_PAGE_SELECTOR = ".slidev-page"

SLIDE_CENSUS_SCRIPT = """() => {
  const pageNumberOf = (slide) => {
    const attr = slide.getAttribute('data-slidev-no');
    if (attr && /^\\d+$/.test(attr)) return parseInt(attr, 10);
    for (const name of Array.from(slide.classList)) {
      const match = name.match(/^slidev-page-(\\d+)$/);
      if (match) return parseInt(match[1], 10);
    }
    return null;
  };

  const slides = Array.from(document.querySelectorAll('.slidev-page')).map((slide, index) => {
    const rect = slide.getBoundingClientRect();
    return {
      index,
      pageNumber: pageNumberOf(slide),
      active: slide.classList.contains('active'),
      width: rect.width,
      height: rect.height,
    };
  });

  return {
    slides,
    pathname: window.location.pathname,
    hash: window.location.hash,
  };
}"""

ELEMENT_SNAPSHOT_SCRIPT = """({ slideIndex, exclude, hiddenClass, ancestorDepth, previewLength }) => {
  const slide = document.querySelectorAll('.slidev-page')[slideIndex];
  if (!slide) return null;

  const rectOf = (r) => ({
    left: r.left, top: r.top, right: r.right, bottom: r.bottom, width: r.width, height: r.height,
  });

  const validSelectors = [];
  const invalidSelectors = [];
  for (const selector of exclude) {
    try {
      document.querySelector(selector);
      validSelectors.push(selector);
    } catch (e) {
      invalidSelectors.push(selector);
    }
  }

  const root = slide.querySelector('.slidev-layout') || slide;
  const frameElement =
    slide.closest('.slidev-slide-content') ||
    slide.querySelector('.slidev-slide-content') ||
    document.querySelector('.slidev-slide-content') ||
    document.querySelector('#slide-content') ||
    root;

  const describe = (el) => {
    const tag = el.tagName.toLowerCase();
    const className = typeof el.className === 'string' ? el.className : (el.getAttribute('class') || '');
    return {
      tag,
      className,
      id: el.id || '',
      text: (el.textContent || '').substring(0, previewLength),
      src: tag === 'img' ? el.src : null,
    };
  };

  const elements = [];
  for (const el of Array.from(root.querySelectorAll('*'))) {
    const record = describe(el);

    if (validSelectors.some((selector) => el.closest(selector))) {
      record.excluded = true;
      elements.push(record);
      continue;
    }
    record.excluded = false;

    const style = window.getComputedStyle(el);
    record.overflow = style.overflow;
    record.overflowX = style.overflowX;
    record.overflowY = style.overflowY;
    record.textOverflow = style.textOverflow;
    record.display = style.display;
    record.visibility = style.visibility;
    record.opacity = style.opacity;

    record.hiddenMarker = !!(hiddenClass && el.closest('.' + hiddenClass));

    const ancestors = [];
    let parent = el.parentElement;
    while (parent && parent !== document.body && ancestors.length < ancestorDepth) {
      const parentStyle = window.getComputedStyle(parent);
      ancestors.push({ opacity: parentStyle.opacity, visibility: parentStyle.visibility });
      parent = parent.parentElement;
    }
    record.ancestors = ancestors;

    record.clientWidth = el.clientWidth;
    record.clientHeight = el.clientHeight;
    record.scrollWidth = el.scrollWidth;
    record.scrollHeight = el.scrollHeight;
    record.rect = rectOf(el.getBoundingClientRect());

    const hasDirectText = Array.from(el.childNodes).some(
      (node) => node.nodeType === Node.TEXT_NODE && node.textContent && node.textContent.trim()
    );
    record.hasDirectText = hasDirectText;
    record.textRect = null;
    if (hasDirectText) {
      const range = document.createRange();
      range.selectNodeContents(el);
      record.textRect = rectOf(range.getBoundingClientRect());
    }

    elements.push(record);
  }

  return {
    frame: rectOf(frameElement.getBoundingClientRect()),
    invalidSelectors,
    elements,
  };
}"""
