"""
In-page predicates used with ``page.wait_for_function``.

Each script is a function taking a single argument object. Selectors are the
query form produced by flowreplay.selectors, so ``xpath=`` queries are
evaluated with document.evaluate and everything else with querySelectorAll.
"""

_QUERY_ALL = """
(selector) => {
  if (selector.startsWith('xpath=')) {
    const snapshot = document.evaluate(
      selector.slice(6), document, null, XPathResult.ORDERED_NODE_SNAPSHOT_TYPE, null);
    const nodes = [];
    for (let i = 0; i < snapshot.snapshotLength; i++) nodes.push(snapshot.snapshotItem(i));
    return nodes;
  }
  return Array.from(document.querySelectorAll(selector));
}
"""


def _with_query_all(body: str) -> str:
    return body.replace("__QUERY_ALL__", _QUERY_ALL.strip())


COUNT_MATCHES = _with_query_all("""
({ selector, operator, count }) => {
  const queryAll = __QUERY_ALL__;
  const n = queryAll(selector).length;
  switch (operator) {
    case '==': return n === count;
    case '!=': return n !== count;
    case '>': return n > count;
    case '<': return n < count;
    case '>=': return n >= count;
    case '<=': return n <= count;
    default: return false;
  }
}
""")

PROPERTIES_EQUAL = _with_query_all("""
({ selector, properties }) => {
  const queryAll = __QUERY_ALL__;
  const element = queryAll(selector)[0];
  if (!element) return false;
  for (const [key, value] of Object.entries(properties)) {
    if (Reflect.get(element, key) !== value) return false;
  }
  return true;
}
""")

ATTRIBUTES_EQUAL = _with_query_all("""
({ selector, attributes }) => {
  const queryAll = __QUERY_ALL__;
  const element = queryAll(selector)[0];
  if (!element) return false;
  for (const [key, value] of Object.entries(attributes)) {
    if (element.getAttribute(key) !== value) return false;
  }
  return true;
}
""")

TEXT_EQUALS = _with_query_all("""
({ selector, text }) => {
  const queryAll = __QUERY_ALL__;
  const element = queryAll(selector)[0];
  return !!element && element.textContent === text;
}
""")

SCROLL_TO = "({ x, y }) => { window.scrollTo(x, y); }"
