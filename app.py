import os

from school_attendance.main import create_app

app = create_app()

if __name__ == "__main__":
    socketio = app.extensions["socketio"]
    socketio.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "5000")),
        debug=app.config["DEBUG"],
        allow_unsafe_werkzeug=True,
    )
