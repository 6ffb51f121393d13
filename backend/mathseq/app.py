import io

from flask import Flask, request, jsonify
from flask_cors import CORS

from .codegen import format_tac
from .compiler import CompileOptions, compile_source
from .nodes import node_to_dict
from .optimizer import DEFAULT_MAX_ROUNDS


def empty_response(errors):
    return {
        "tokens": [],
        "ast": {},
        "tac": [],
        "optimized_tac": [],
        "output": [],
        "exit_code": None,
        "errors": errors,
        "warnings": [],
        "symbol_table": {},
        "failed_phase": None,
    }


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_mapping(
        OPTIMIZE=True,
        MAX_OPT_ROUNDS=DEFAULT_MAX_ROUNDS,
        MAX_SOURCE_BYTES=64 * 1024,
    )
    if test_config is None:
        app.config.from_prefixed_env("MATHSEQ")
    else:
        app.config.from_mapping(test_config)
    CORS(app)  # allow cross-origin requests

    @app.route("/compile", methods=["POST"])
    def compile_code():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}
        code = data.get("code")
        if not isinstance(code, str):
            return jsonify(empty_response(["Missing 'code' in request body"])), 400
        if len(code.encode("utf-8")) > app.config["MAX_SOURCE_BYTES"]:
            return jsonify(empty_response(
                [f"Source exceeds {app.config['MAX_SOURCE_BYTES']} bytes"])), 400

        options = CompileOptions(
            optimize=bool(data.get("optimize", app.config["OPTIMIZE"])),
            max_opt_rounds=app.config["MAX_OPT_ROUNDS"],
            stdin=io.StringIO(data.get("input") or ""),
            stdout=io.StringIO(),
        )
        try:
            result = compile_source(code, options)

            # Process tokens to match terminal format
            processed_tokens = []
            for token in result['tokens']:
                if token.type.name != 'EOF':
                    processed_tokens.append({
                        "type": token.type.name,
                        "value": token.value,
                        "lineno": token.lineno,
                        "col": token.col,
                    })

            response = {
                "tokens": processed_tokens,
                "ast": node_to_dict(result['ast']) if result['ast'] else {},
                "tac": format_tac(result['tac']),
                "optimized_tac": format_tac(result['optimized_tac']),
                "output": result['output'],
                "exit_code": result['exit_code'],
                "errors": result['errors'],
                "warnings": result['warnings'],
                "symbol_table": result['symbol_table'],
                "failed_phase": result['failed_phase'],
            }
            if result['errors']:
                app.logger.info("compile finished with %d errors", len(result['errors']))
            return jsonify(response)
        except Exception as e:
            app.logger.exception("unexpected failure while compiling")
            return jsonify(empty_response([f"Unexpected error: {str(e)}"])), 500

    return app


if __name__ == "__main__":
    create_app().run(debug=True)
