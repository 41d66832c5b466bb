"""Single-page client served at ``/``.

The page polls ``/state`` and renders whichever view the server reports.
Every button maps to one JSON endpoint; the server owns all quiz state.
"""

from __future__ import annotations

from quiz_studio.constants.network_constants import STATE_POLL_INTERVAL_MS
from quiz_studio.constants.ui_constants import PAGE_TITLE
from quiz_studio.core.markdown_math_renderer import MATHJAX_SCRIPT

_APP_PAGE_TEMPLATE = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>__TITLE__</title>
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <style>
      :root { font-family: 'Inter', system-ui, sans-serif; background: #0b1120; color: #f5f7ff; }
      body { margin: 0 auto; padding: 1.5rem; max-width: 56rem; display: flex; flex-direction: column; gap: 1rem; }
      header { display: flex; justify-content: space-between; align-items: baseline; }
      .user-id { color: #94a3b8; font-size: 0.85rem; word-break: break-all; }
      .card { background: #111a30; border-radius: 0.75rem; padding: 1.5rem; box-shadow: 0 0.5rem 1.5rem rgba(0, 0, 0, 0.4); }
      .hidden { display: none; }
      .banner { border-radius: 0.75rem; padding: 0.85rem 1.1rem; display: flex; justify-content: space-between; gap: 1rem; }
      .banner.error { background: #7f1d1d; }
      .banner.notice { background: #14532d; }
      .banner.fatal { background: #7f1d1d; font-size: 1.1rem; }
      .banner button { background: none; border: none; color: inherit; font-size: 1.2rem; cursor: pointer; }
      .primary-button, .secondary-button { border: none; border-radius: 0.75rem; padding: 0.75rem 1.3rem; font-size: 1rem; color: #fff; cursor: pointer; }
      .primary-button { background: #1f9aa5; }
      .secondary-button { background: #334155; }
      .primary-button:disabled, .secondary-button:disabled { opacity: 0.5; cursor: not-allowed; }
      .quiz-grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(220px, 1fr)); gap: 0.75rem; }
      .quiz-tile { background: #1e293b; border-radius: 0.75rem; padding: 1rem; cursor: pointer; border: 1px solid transparent; }
      .quiz-tile:hover { border-color: #1f9aa5; }
      .quiz-tile small { color: #94a3b8; }
      .options { display: flex; flex-direction: column; gap: 0.6rem; margin: 1rem 0; }
      .option { text-align: left; border: 2px solid #334155; border-radius: 0.75rem; padding: 0.85rem 1rem; background: #1e293b; color: #f5f7ff; font-size: 1rem; cursor: pointer; }
      .option:disabled { cursor: default; }
      .option.selected { border-color: #38bdf8; background: #0c4a6e; }
      .option.correct { border-color: #4ade80; background: #14532d; }
      .option.incorrect { border-color: #f87171; background: #7f1d1d; }
      .rationale { margin-top: 0.4rem; font-size: 0.9rem; color: #cbd5e1; }
      .feedback.correct { color: #4ade80; }
      .feedback.incorrect { color: #f87171; }
      .hint { background: #1e293b; border-left: 3px solid #facc15; padding: 0.5rem 0.9rem; margin: 0.5rem 0; }
      .progress { color: #94a3b8; font-size: 0.9rem; }
      .row { display: flex; gap: 0.75rem; flex-wrap: wrap; align-items: center; }
      .review-item { border-top: 1px solid #334155; padding: 0.75rem 0; }
      .review-item .ok { color: #4ade80; }
      .review-item .bad { color: #f87171; }
      label { display: block; font-size: 0.9rem; color: #cbd5e1; margin: 0.6rem 0 0.25rem; }
      input[type=text], textarea { width: 100%; box-sizing: border-box; padding: 0.55rem; border-radius: 0.5rem; border: 1px solid #334155; background: #0f172a; color: #f5f7ff; font: inherit; }
      .draft { border: 1px solid #334155; border-radius: 0.75rem; padding: 1rem; margin: 1rem 0; }
      .draft-option { display: grid; grid-template-columns: auto 1fr 1fr; gap: 0.5rem; align-items: center; margin: 0.35rem 0; }
    </style>
    <script>
      window.MathJax = { tex: { inlineMath: [['$','$']], displayMath: [['$$','$$']] }, svg: { fontCache: 'global' } };
    </script>
    <script defer src="__MATHJAX__"></script>
  </head>
  <body>
    <header>
      <h1>__TITLE__</h1>
      <span id="user-id" class="user-id"></span>
    </header>
    <div id="fatal" class="banner fatal hidden"></div>
    <div id="error" class="banner error hidden"><span id="error-text"></span><button id="error-close" title="Dismiss">&times;</button></div>
    <div id="notice" class="banner notice hidden"></div>

    <section id="list-view" class="card hidden">
      <div class="row" style="justify-content: space-between;">
        <h2>Quizzes</h2>
        <button id="open-authoring" class="primary-button">Create New Quiz</button>
      </div>
      <p id="list-status"></p>
      <div id="quiz-grid" class="quiz-grid"></div>
    </section>

    <section id="taking-view" class="card hidden">
      <div id="taking-question"></div>
      <div id="taking-results" class="hidden"></div>
    </section>

    <section id="authoring-view" class="card hidden">
      <h2>Create a Quiz</h2>
      <label for="quiz-title">Quiz title</label>
      <input id="quiz-title" type="text" />
      <div id="drafts"></div>
      <div class="row">
        <button id="add-question" class="secondary-button">Add Question</button>
        <button id="save-quiz" class="primary-button">Save Quiz</button>
        <button id="cancel-authoring" class="secondary-button">Cancel</button>
      </div>
    </section>

    <script>
      const LETTERS = ['A', 'B', 'C', 'D', 'E', 'F'];
      let state = null;
      let authoringRendered = false;
      let pendingEdits = [];

      const $ = (id) => document.getElementById(id);
      const show = (el, visible) => el.classList.toggle('hidden', !visible);

      function el(tag, attrs, children) {
        const node = document.createElement(tag);
        Object.entries(attrs || {}).forEach(([key, value]) => {
          if (key === 'text') { node.textContent = value; }
          else if (key === 'html') { node.innerHTML = value; }
          else if (key === 'onclick') { node.addEventListener('click', value); }
          else { node.setAttribute(key, value); }
        });
        (children || []).forEach((child) => node.appendChild(child));
        return node;
      }

      function typeset(node) {
        if (window.MathJax && window.MathJax.typesetPromise) {
          window.MathJax.typesetPromise([node]).catch(() => {});
        }
      }

      async function api(method, path, body) {
        const options = { method, headers: { 'Content-Type': 'application/json' } };
        if (body !== undefined) { options.body = JSON.stringify(body); }
        let response;
        try {
          response = await fetch(path, options);
        } catch (error) {
          showLocalError('Unable to reach the quiz server.');
          return null;
        }
        const data = await response.json().catch(() => ({}));
        if (!response.ok) {
          showLocalError(typeof data.detail === 'string' ? data.detail : 'Request failed.');
          await refresh();
          return null;
        }
        if (data && data.view) { state = data; render(); }
        return data;
      }

      function showLocalError(message) {
        $('error-text').textContent = message;
        show($('error'), true);
      }

      async function refresh() {
        try {
          const response = await fetch('/state');
          state = await response.json();
          render();
        } catch (error) {
          showLocalError('Unable to reach the quiz server.');
        }
      }

      function render() {
        if (!state) { return; }
        $('user-id').textContent = state.session.user_id ? 'User: ' + state.session.user_id : 'Signing in…';
        if (state.fatal_error) {
          $('fatal').textContent = state.fatal_error;
          show($('fatal'), true);
          ['list-view', 'taking-view', 'authoring-view', 'error', 'notice'].forEach((id) => show($(id), false));
          return;
        }
        show($('fatal'), false);
        if (state.error_message) { $('error-text').textContent = state.error_message; }
        show($('error'), Boolean(state.error_message));
        $('notice').textContent = state.notice || '';
        show($('notice'), Boolean(state.notice));

        show($('list-view'), state.view === 'list');
        show($('taking-view'), state.view === 'taking');
        show($('authoring-view'), state.view === 'authoring');
        if (state.view !== 'authoring') { authoringRendered = false; }

        if (state.view === 'list') { renderList(); }
        if (state.view === 'taking') { renderTaking(); }
        if (state.view === 'authoring') { renderAuthoring(); }
      }

      function renderList() {
        const list = state.list;
        const grid = $('quiz-grid');
        grid.innerHTML = '';
        if (state.session.state !== 'ready') {
          $('list-status').textContent = 'Signing in…';
          return;
        }
        if (list.loading) {
          $('list-status').textContent = 'Loading quizzes…';
          return;
        }
        $('list-status').textContent = list.quizzes.length ? '' : 'No quizzes yet. Create the first one!';
        list.quizzes.forEach((quiz) => {
          grid.appendChild(el('div', { class: 'quiz-tile', onclick: () => api('POST', '/quizzes/' + encodeURIComponent(quiz.id) + '/select') }, [
            el('h3', { text: quiz.title }),
            el('small', { text: quiz.question_count + ' question(s)' }),
          ]));
        });
      }

      function renderTaking() {
        const taking = state.taking;
        const questionEl = $('taking-question');
        const resultsEl = $('taking-results');
        const finished = taking.phase === 'results';
        show(questionEl, !finished);
        show(resultsEl, finished);
        if (finished) { renderResults(taking, resultsEl); return; }

        questionEl.innerHTML = '';
        questionEl.appendChild(el('h2', { text: taking.quiz_title }));
        questionEl.appendChild(el('p', { class: 'progress', text: 'Question ' + (taking.question_index + 1) + ' of ' + taking.total_questions }));
        questionEl.appendChild(el('div', { html: taking.question_html }));
        if (taking.hint_visible && taking.hint_html) {
          questionEl.appendChild(el('div', { class: 'hint', html: taking.hint_html }));
        }

        const options = el('div', { class: 'options' });
        taking.options.forEach((option, index) => {
          const button = el('button', { class: 'option ' + option.highlight }, [
            el('div', { text: LETTERS[index] + '. ' + option.text }),
          ]);
          if (option.rationale_html) {
            button.appendChild(el('div', { class: 'rationale', html: option.rationale_html }));
          }
          button.disabled = taking.phase !== 'answering';
          button.addEventListener('click', () => api('POST', '/taking/answer', { option_index: index }));
          options.appendChild(button);
        });
        questionEl.appendChild(options);

        if (taking.feedback) {
          questionEl.appendChild(el('p', { class: 'feedback ' + (taking.is_correct ? 'correct' : 'incorrect'), text: taking.feedback }));
        }

        const controls = el('div', { class: 'row' });
        if (taking.has_hint) {
          controls.appendChild(el('button', { class: 'secondary-button', text: taking.hint_visible ? 'Hide Hint' : 'Show Hint', onclick: () => api('POST', '/taking/hint') }));
        }
        const isLast = taking.question_index + 1 >= taking.total_questions;
        const next = el('button', { class: 'primary-button', text: isLast ? 'Finish Quiz' : 'Next Question', onclick: () => api('POST', '/taking/advance') });
        next.disabled = !taking.can_advance;
        controls.appendChild(next);
        controls.appendChild(el('button', { class: 'secondary-button', text: 'Back to Quizzes', onclick: () => api('POST', '/taking/exit') }));
        questionEl.appendChild(controls);
        typeset(questionEl);
      }

      function renderResults(taking, resultsEl) {
        resultsEl.innerHTML = '';
        resultsEl.appendChild(el('h2', { text: taking.quiz_title + ': Results' }));
        resultsEl.appendChild(el('p', { text: 'You scored ' + taking.score + ' out of ' + taking.total_questions + '.' }));
        (taking.review || []).forEach((item) => {
          const entry = el('div', { class: 'review-item' }, [
            el('div', { html: item.question_html }),
            el('p', { class: item.is_correct ? 'ok' : 'bad', text: 'Your answer: ' + (item.selected_text || 'none') + (item.is_correct ? ' ✓' : ' ✗') }),
          ]);
          if (!item.is_correct && item.correct_text) {
            entry.appendChild(el('p', { text: 'Correct answer: ' + item.correct_text }));
          }
          if (item.rationale_html) {
            entry.appendChild(el('div', { class: 'rationale', html: item.rationale_html }));
          }
          resultsEl.appendChild(entry);
        });
        resultsEl.appendChild(el('div', { class: 'row' }, [
          el('button', { class: 'primary-button', text: 'Retake Quiz', onclick: () => api('POST', '/taking/retake') }),
          el('button', { class: 'secondary-button', text: 'Back to Quizzes', onclick: () => api('POST', '/taking/exit') }),
        ]));
        typeset(resultsEl);
      }

      function trackEdit(promise) {
        pendingEdits.push(promise);
        promise.finally(() => { pendingEdits = pendingEdits.filter((pending) => pending !== promise); });
        return promise;
      }

      function bindEdit(input, method, path, field) {
        input.addEventListener('change', () => trackEdit(api(method, path, { [field]: input.value })));
      }

      function renderAuthoring() {
        const authoring = state.authoring;
        $('save-quiz').disabled = authoring.is_saving;
        $('save-quiz').textContent = authoring.is_saving ? 'Saving…' : 'Save Quiz';
        $('cancel-authoring').disabled = authoring.is_saving;
        $('add-question').disabled = authoring.is_saving;
        const drafts = $('drafts');
        if (authoringRendered && drafts.children.length === authoring.questions.length) { return; }
        authoringRendered = true;

        $('quiz-title').value = authoring.title;
        drafts.innerHTML = '';
        authoring.questions.forEach((draft, q) => {
          const base = '/authoring/questions/' + q;
          const questionInput = el('textarea', { rows: '2' });
          questionInput.value = draft.question;
          bindEdit(questionInput, 'PUT', base, 'text');
          const hintInput = el('input', { type: 'text', placeholder: 'Optional hint' });
          hintInput.value = draft.hint;
          bindEdit(hintInput, 'PUT', base, 'hint');

          const box = el('div', { class: 'draft' }, [
            el('h3', { text: 'Question ' + (q + 1) }),
            el('label', { text: 'Question text' }), questionInput,
            el('label', { text: 'Hint' }), hintInput,
            el('label', { text: 'Answer options (select the correct one)' }),
          ]);
          draft.options.forEach((option, i) => {
            const radio = el('input', { type: 'radio', name: 'correct-' + q });
            radio.checked = draft.correct_option_index === i;
            radio.addEventListener('change', () => trackEdit(api('PUT', base + '/correct', { option_index: i })));
            const textInput = el('input', { type: 'text', placeholder: 'Option ' + LETTERS[i] });
            textInput.value = option.text;
            bindEdit(textInput, 'PUT', base + '/options/' + i, 'text');
            const rationaleInput = el('input', { type: 'text', placeholder: 'Rationale (optional)' });
            rationaleInput.value = option.rationale;
            bindEdit(rationaleInput, 'PUT', base + '/options/' + i, 'rationale');
            box.appendChild(el('div', { class: 'draft-option' }, [radio, textInput, rationaleInput]));
          });
          drafts.appendChild(box);
        });
      }

      $('error-close').addEventListener('click', () => { show($('error'), false); api('POST', '/messages/dismiss'); });
      $('open-authoring').addEventListener('click', () => api('POST', '/authoring/open'));
      $('cancel-authoring').addEventListener('click', () => api('POST', '/authoring/close'));
      $('add-question').addEventListener('click', async () => {
        await Promise.all(pendingEdits);
        await api('POST', '/authoring/questions');
      });
      $('quiz-title').addEventListener('change', () => trackEdit(api('PUT', '/authoring/title', { title: $('quiz-title').value })));
      $('save-quiz').addEventListener('click', async () => {
        $('save-quiz').disabled = true;
        $('cancel-authoring').disabled = true;
        $('add-question').disabled = true;
        await Promise.all(pendingEdits);
        await api('POST', '/authoring/save');
        await refresh();
      });

      refresh();
      setInterval(refresh, __POLL_MS__);
    </script>
  </body>
</html>
"""

APP_PAGE_HTML = (
    _APP_PAGE_TEMPLATE.replace("__TITLE__", PAGE_TITLE)
    .replace("__MATHJAX__", MATHJAX_SCRIPT)
    .replace("__POLL_MS__", str(STATE_POLL_INTERVAL_MS))
)
