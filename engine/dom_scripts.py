# engine/dom_scripts.py
"""
In-page JavaScript used by the engine.

PROCESS_ELEMENTS_JS is evaluated directly (page.evaluate) and returns
{outputString, selectorMap}. DOM_SETTLE_INIT_JS is installed as an init
script so every document exposes window.waitForDomSettle(timeoutMs).
"""

PROCESS_ELEMENTS_JS = """
() => {
    const INTERACTIVE_TAGS = new Set(["a", "button", "input", "select", "textarea", "details", "summary", "label", "option"]);
    const INTERACTIVE_ROLES = new Set([
        "button", "link", "checkbox", "radio", "switch", "tab", "textbox", "combobox",
        "listbox", "option", "menuitem", "menuitemcheckbox", "menuitemradio", "slider", "searchbox"
    ]);
    const SKIP_TAGS = new Set(["script", "style", "noscript", "template", "svg", "head", "meta", "link"]);
    const KEEP_ATTRS = ["id", "name", "type", "role", "aria-label", "placeholder", "value", "href", "title", "alt", "data-testid"];

    const isVisible = (el) => {
        const style = window.getComputedStyle(el);
        if (!style || style.display === "none" || style.visibility === "hidden") return false;
        const rect = el.getBoundingClientRect();
        return rect.width > 0 && rect.height > 0;
    };

    const isInteractive = (el) => {
        const tag = el.tagName.toLowerCase();
        if (INTERACTIVE_TAGS.has(tag)) return true;
        const role = el.getAttribute("role");
        if (role && INTERACTIVE_ROLES.has(role)) return true;
        if (el.hasAttribute("onclick") || el.isContentEditable) return true;
        const tabindex = el.getAttribute("tabindex");
        return tabindex !== null && tabindex !== "-1";
    };

    const isTextLeaf = (el) => {
        if (el.children.length > 0) return false;
        const text = (el.textContent || "").trim();
        return text.length > 0 && text.length <= 200;
    };

    const xpathOf = (el) => {
        const parts = [];
        for (let node = el; node && node.nodeType === Node.ELEMENT_NODE; node = node.parentNode) {
            const tag = node.tagName.toLowerCase();
            let index = 1;
            let sameTagSiblings = 0;
            for (let sib = node.parentNode ? node.parentNode.firstElementChild : null; sib; sib = sib.nextElementSibling) {
                if (sib.tagName === node.tagName) {
                    sameTagSiblings += 1;
                    if (sib === node) index = sameTagSiblings;
                }
            }
            parts.unshift(sameTagSiblings > 1 ? `${tag}[${index}]` : tag);
        }
        return "/" + parts.join("/");
    };

    const describe = (el) => {
        const tag = el.tagName.toLowerCase();
        const attrs = KEEP_ATTRS
            .filter((name) => el.hasAttribute(name))
            .map((name) => `${name}="${String(el.getAttribute(name)).slice(0, 80).replace(/"/g, "'")}"`);
        const text = (el.innerText || el.textContent || "").replace(/\\s+/g, " ").trim().slice(0, 120);
        const open = attrs.length ? `<${tag} ${attrs.join(" ")}>` : `<${tag}>`;
        return `${open}${text}</${tag}>`;
    };

    const lines = [];
    const selectorMap = {};
    let id = 0;
    const walker = document.createTreeWalker(document.body || document.documentElement, NodeFilter.SHOW_ELEMENT);
    for (let el = walker.currentNode; el; el = walker.nextNode()) {
        if (el.nodeType !== Node.ELEMENT_NODE) continue;
        if (SKIP_TAGS.has(el.tagName.toLowerCase())) continue;
        if (!(isInteractive(el) || isTextLeaf(el))) continue;
        if (!isVisible(el)) continue;
        lines.push(`${id}:${describe(el)}`);
        selectorMap[id] = xpathOf(el);
        id += 1;
    }
    return { outputString: lines.join("\\n"), selectorMap };
}
"""

DOM_SETTLE_INIT_JS = """
(() => {
    if (window.waitForDomSettle) return;
    window.waitForDomSettle = (timeoutMs = 5000, quietMs = 500) => new Promise((resolve, reject) => {
        let quietTimer = null;
        const done = (fn, value) => {
            observer.disconnect();
            clearTimeout(quietTimer);
            clearTimeout(hardTimer);
            fn(value);
        };
        const observer = new MutationObserver(() => {
            clearTimeout(quietTimer);
            quietTimer = setTimeout(() => done(resolve, true), quietMs);
        });
        const hardTimer = setTimeout(() => done(reject, new Error("settle timeout")), timeoutMs);
        observer.observe(document, { childList: true, subtree: true, attributes: true, characterData: true });
        quietTimer = setTimeout(() => done(resolve, true), quietMs);
    });
})();
"""
