# main.py: entrypoint de produção (gunicorn main:app) reutilizando o app do app.py

from app import app  # importa o Flask app já configurado no app.py

if __name__ == "__main__":
    import os
    port = int(os.environ.get("PORT", 8080))
    app.run(host="0.0.0.0", port=port, debug=os.environ.get("FLASK_DEBUG") == "1")
