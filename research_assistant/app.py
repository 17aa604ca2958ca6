import logging
import os
from html import escape

from dotenv import load_dotenv
from flask import Flask, abort, jsonify, request
from flask_cors import CORS

from .services.analytics import summarize_selection
from .services.assistant import AssistantError, ask, build_context, find_citations
from .services.highlight import highlight, highlight_html, spans_to_json
from .services.ranking import RankingPolicy, rank, score_paper
from .services.search import normalize_query
from .utils.loader import NO_LINK, index_by_id, load_corpus

LOGGER = logging.getLogger(__name__)

DATA_PATH = os.path.join(os.path.dirname(__file__), 'papers.json')


def _parse_ids(raw):
    """Parse a list of paper ids from '1,2,3' or a JSON list."""
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = raw.split(',')
    ids = []
    for v in raw:
        try:
            ids.append(int(str(v).strip()))
        except ValueError:
            continue
    return ids


def create_app(config=None):
    app = Flask(__name__)
    CORS(app)

    app.config.update(
        PAPERS_PATH=os.getenv('PAPERS_PATH', DATA_PATH),
        GEMINI_API_KEY=os.getenv('GEMINI_API_KEY'),
        GEMINI_MODEL=os.getenv('GEMINI_MODEL'),
        RANKING_POLICY=None,
    )
    if config:
        app.config.update(config)

    # corpus is loaded once and never modified afterwards
    papers = load_corpus(app.config['PAPERS_PATH'])
    paper_by_id = index_by_id(papers)
    policy = RankingPolicy.from_mapping(app.config.get('RANKING_POLICY'))

    def _selected(ids):
        return [paper_by_id[i] for i in ids if i in paper_by_id]

    @app.route('/api/papers')
    def all_papers():
        return jsonify(papers)

    @app.route('/api/search')
    def search():
        """
        Ranked search over the corpus.
        Empty query or no match returns the corpus as-is (score 0).
        Each result carries title/abstract highlight spans for the query.
        """
        q = normalize_query(request.args.get('q'))
        out = []
        for p in rank(papers, q, policy):
            enriched = dict(p)  # shallow copy
            enriched['score'] = score_paper(p, q, policy)
            if q:
                enriched['highlights'] = {
                    'title': spans_to_json(highlight(p['title'], q)),
                    'abstract': spans_to_json(highlight(p['abstract'], q)),
                }
            out.append(enriched)
        return jsonify(out)

    @app.route('/api/ask', methods=['POST'])
    def api_ask():
        body = request.get_json(silent=True) or {}
        question = body.get('question')
        context = body.get('context')
        selected = _selected(_parse_ids(body.get('paper_ids')))
        if not context and selected:
            context = build_context(selected)

        if not isinstance(question, str) or not question.strip() \
                or not isinstance(context, str) or not context.strip():
            return jsonify({'error': 'Missing question or context'}), 400

        try:
            answer = ask(question, context,
                         api_key=app.config.get('GEMINI_API_KEY'),
                         model=app.config.get('GEMINI_MODEL'))
        except AssistantError as exc:
            LOGGER.error('Question answering failed: %s', exc)
            return jsonify({'error': str(exc)}), 500

        return jsonify({'answer': answer, 'citations': find_citations(answer, selected)})

    @app.route('/api/visualizations')
    def api_visualizations():
        return jsonify(summarize_selection(_selected(_parse_ids(request.args.get('ids')))))

    @app.route('/paper/<int:paper_id>')
    def serve_paper_page(paper_id):
        p = paper_by_id.get(paper_id)
        if not p:
            return abort(404)

        q = normalize_query(request.args.get('q'))
        title = highlight_html(p['title'], q)
        authors = escape(', '.join(p['authors']))
        year = escape(str(p['year']))
        journal = escape(p['journal'])
        abstract = highlight_html(p['abstract'], q)
        keywords = escape(', '.join(p['keywords']))

        # Only show external Open button if the paper has a link
        if p['url'] != NO_LINK:
            esc_link = escape(p['url'])
            link_button = f'<p><a href="{esc_link}" target="_blank" rel="noopener" style="display:inline-block;padding:10px 14px;background:#6c63ff;color:#fff;border-radius:8px;text-decoration:none;">Open paper (external)</a></p>'
        else:
            link_button = '<p class="small" style="color:#6b7280;"><em>No external link available for this paper.</em></p>'

        html = f"""
        <!doctype html>
        <html>
          <head><meta charset="utf-8"/><title>{escape(p['title'])}</title><meta name="viewport" content="width=device-width,initial-scale=1" /></head>
          <body style="font-family:Inter, Arial, sans-serif; padding:24px; color:#111827;">
            <a href="/" style="color:#6c63ff; text-decoration:none;">← Back</a>
            <h1>{title}</h1>
            <div style="color:#6b7280;margin-bottom:12px;">{authors} · {year} · {journal} · Citations: {p['citations']}</div>
            {link_button}
            <h3>Abstract</h3>
            <p style="max-width:760px;">{abstract}</p>
            <h3>Keywords</h3>
            <p>{keywords or '<em>None</em>'}</p>
          </body>
        </html>
        """
        return html

    return app


app = create_app()


def main():
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    port = int(os.environ.get("PORT", 5000))
    create_app().run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
