from __future__ import annotations

from typing import Sequence

from chatrelay.ui.layout import _esc, page_html

# Plain string (not an f-string) so the JS braces stay readable.
_SCRIPT = """
<script>
  const history = [];
  let controller = null;

  function addMsg(role, text) {
    const el = document.createElement('div');
    el.className = 'msg ' + role;
    const r = document.createElement('div');
    r.className = 'role';
    r.textContent = role;
    const body = document.createElement('pre');
    body.textContent = text;
    el.appendChild(r);
    el.appendChild(body);
    document.getElementById('log').appendChild(el);
    return body;
  }

  function handleFrame(frame, out, state) {
    let name = 'message', data = '';
    for (const line of frame.split('\\n')) {
      if (line.startsWith('event: ')) name = line.slice(7);
      else if (line.startsWith('data: ')) data += line.slice(6);
    }
    if (name === 'token') {
      state.text += JSON.parse(data).content;
      out.textContent = state.text;
    } else if (name === 'error') {
      out.textContent = state.text + '\\n[' + JSON.parse(data).error + ']';
      state.failed = true;
    }
  }

  async function send() {
    const box = document.getElementById('content');
    const text = box.value.trim();
    if (!text || controller) return;
    box.value = '';

    const system = document.getElementById('system').value.trim();
    history.push({ role: 'user', content: text });
    addMsg('user', text);
    const out = addMsg('assistant', '');
    const state = { text: '', failed: false };

    const messages = system ? [{ role: 'system', content: system }, ...history] : history.slice();
    controller = new AbortController();
    try {
      const resp = await fetch('/api/stream', {
        method: 'POST',
        headers: { 'Content-Type': 'application/json' },
        body: JSON.stringify({ messages, endpoint: document.getElementById('endpoint').value }),
        signal: controller.signal,
      });
      if (!resp.ok) {
        out.textContent = '[' + ((await resp.json()).error || resp.status) + ']';
        return;
      }
      const reader = resp.body.getReader();
      const decoder = new TextDecoder();
      let buf = '';
      while (true) {
        const { value, done } = await reader.read();
        if (done) break;
        buf += decoder.decode(value, { stream: true });
        const frames = buf.split('\\n\\n');
        buf = frames.pop();
        frames.forEach(f => handleFrame(f, out, state));
      }
    } catch (e) {
      if (e.name !== 'AbortError') out.textContent = state.text + '\\n[' + e + ']';
    } finally {
      controller = null;
      if (state.text && !state.failed) history.push({ role: 'assistant', content: state.text });
    }
  }

  function stop() {
    if (controller) controller.abort();
  }
</script>
"""

_CSS = """
    select, textarea, input { width:100%; padding:10px; margin-top:6px; box-sizing:border-box; }
    button { padding:10px 14px; cursor:pointer; margin-top:10px; }
    .msg { border:1px solid #e5e7eb; border-radius:10px; padding:10px; margin:10px 0; }
    .msg.user { border-left:4px solid #0ea5e9; }
    .msg.assistant { border-left:4px solid #a855f7; }
    .role { font-size:12px; color:#64748b; margin-bottom:6px; font-weight:600; text-transform:uppercase; }
    pre { margin:0; white-space:pre-wrap; word-break:break-word; }
"""


def chat_page(endpoints: Sequence[str]) -> str:
    options = "".join(
        f"<option value='{_esc(ep)}'>{_esc(ep)}{' (default)' if i == 0 else ''}</option>"
        for i, ep in enumerate(endpoints)
    )

    body = f"""
  <h2>Chat relay</h2>

  <div class="card">
    <label>Backend</label>
    <select id="endpoint">{options}</select>

    <div style="margin-top:12px;">
      <label>System prompt (optional)</label>
      <input id="system" placeholder="You are a helpful assistant." />
    </div>
  </div>

  <div id="log"></div>

  <div class="card">
    <label>Message</label>
    <textarea id="content" rows="4" placeholder="Type a message..."></textarea>
    <button type="button" onclick="send()">Send</button>
    <button type="button" onclick="stop()">Stop</button>
  </div>

  <p class="muted">Tokens stream from <code>/api/stream</code> as server-sent events.</p>
"""
    return page_html("Chat relay", body + _SCRIPT, active="chat", extra_css=_CSS)
