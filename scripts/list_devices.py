import pyaudio

from voicewake.audio.capture import list_input_devices


def main() -> None:
    pa = pyaudio.PyAudio()
    try:
        print("Input devices (use the name or index as wake.mic_id):")
        for d in list_input_devices(pa):
            print(f"  [{d['index']}] {d['name']} ({d['maxInputChannels']} ch, {int(d['defaultSampleRate'])} Hz)")
    finally:
        pa.terminate()


if __name__ == "__main__":
    main()
