"""Browser client — the script pages load to receive change notifications.

Mirrors the ChangeRouter state machine in plain JavaScript: local-host
guard, ``lookout:fileChange`` events on ``window`` and ``document``,
script hot-swap, stylesheet cache busting, reload for markup, and the
``always-trigger-hashchange`` invalidation of ``window._PageState``.
"""

from __future__ import annotations

from lookout.client.router import FILE_CHANGE_EVENT

# Placeholders are substituted by render_client_script().  Kept free of
# dependencies: native WebSocket, fetch and CustomEvent only.
_CLIENT_SCRIPT = """\
<script data-lookout-client>
(function() {
  var EVENT = '__EVENT__';
  var PORT = __PORT__;
  var HOSTS = [/^localhost$/, /^127\\.0\\.0\\.1$/, /^192\\.168\\.2\\.\\d+$/, /^172\\.\\d+\\.\\d+\\.\\d+$/];
  var host = window.location.hostname;
  if (!HOSTS.some(function(p) { return p.test(host); })) {
    console.log('[lookout] inactive: only available on local hosts');
    return;
  }
  function endsWith(path, ext) {
    return path.length >= ext.length && path.slice(-ext.length) === ext;
  }
  function classify(path) {
    if (endsWith(path, '.js')) return 'script';
    if (endsWith(path, '.css')) return 'stylesheet';
    if (endsWith(path, '.html')) return 'markup';
    return 'other';
  }
  function emit(detail) {
    window.dispatchEvent(new CustomEvent(EVENT, {detail: detail}));
    document.dispatchEvent(new CustomEvent(EVENT, {detail: detail}));
  }
  async function reloadScript(path) {
    try {
      var res = await fetch('./' + path);
      var code = await res.text();
      new Function(code).call(window);
      console.log('[lookout] script loaded and executed:', path);
    } catch (err) {
      console.error('[lookout] error running script:', path, err);
    }
  }
  function hrefMatches(href, path) {
    var target = href.split('?')[0].split('#')[0];
    return target === path || endsWith(target, '/' + path);
  }
  function refreshStylesheet(path) {
    try {
      var href = './' + path + '?v=' + Date.now();
      var found = 0;
      document.querySelectorAll('link[rel="stylesheet"]').forEach(function(link) {
        if (hrefMatches(link.getAttribute('href') || '', path)) {
          link.href = href;
          found++;
        }
      });
      if (!found) {
        var link = document.createElement('link');
        link.rel = 'stylesheet';
        link.href = href;
        document.head.appendChild(link);
      }
      console.log('[lookout] stylesheet refreshed:', path);
    } catch (err) {
      console.error('[lookout] error refreshing stylesheet:', path, err);
    }
  }
  var ws = new WebSocket('ws://' + host + ':' + PORT);
  ws.onmessage = async function(e) {
    var data;
    try {
      data = JSON.parse(e.data);
    } catch (err) {
      console.error('[lookout] error parsing message:', err);
      return;
    }
    if (!data || data.type !== 'fileChange' || typeof data.filePath !== 'string') return;
    emit({type: data.type, filePath: data.filePath});
    var kind = classify(data.filePath);
    if (kind === 'markup') {
      window.location.reload();
      return;
    }
    if (kind === 'script') await reloadScript(data.filePath);
    else if (kind === 'stylesheet') refreshStylesheet(data.filePath);
    if (data.strategy === 'always-trigger-hashchange') {
      if (window._PageState) window._PageState.instance = null;
      window.dispatchEvent(new Event('hashchange'));
    }
  };
  ws.onerror = function() {
    console.warn('[lookout] notification server inactive. Start it with: lookout run --watch-all');
  };
})();
</script>
"""


def render_client_script(port: int = 9996) -> str:
    """Return the ``<script>`` element that connects a page to *port*."""
    return (
        _CLIENT_SCRIPT
        .replace("__EVENT__", FILE_CHANGE_EVENT)
        .replace("__PORT__", str(int(port)))
    )


def inject_client(html: str, *, port: int = 9996) -> str:
    """Insert the client script into an HTML document.

    Injects just before ``</body>`` (or ``</html>``, or appends if neither
    closing tag exists).  Documents that already carry the client are
    returned unchanged.

    """
    if "data-lookout-client" in html:
        return html

    script = render_client_script(port)
    if "</body>" in html:
        return html.replace("</body>", script + "</body>", 1)
    if "</html>" in html:
        return html.replace("</html>", script + "</html>", 1)
    return html + script
