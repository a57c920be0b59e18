from native_speech_server.main import main

main()
