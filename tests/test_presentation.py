from escapetime import FrameCoordinator
from escapetime import RenderParameters
from escapetime import Viewport
from escapetime import frame_to_image
from escapetime import map_color
from escapetime import new_pixel_buffer
from escapetime import pixel_to_index
from escapetime.partition import index_to_sample


class TestFrameToImage:
    def test_first_buffer_pixel_is_top_left(self):
        # GIVEN
        params = RenderParameters(width=5, height=3, workers=1)
        buffer = new_pixel_buffer(params)
        buffer[:, 3] = 255
        buffer[0] = (10, 20, 30, 255)
        buffer[params.width - 1] = (40, 50, 60, 255)
        buffer[-1] = (70, 80, 90, 255)

        # WHEN
        image = frame_to_image(buffer, params)

        # THEN
        assert image.size == (params.width, params.height)
        assert image.getpixel((0, 0)) == (10, 20, 30, 255)
        assert image.getpixel((params.width - 1, 0)) == (40, 50, 60, 255)
        assert image.getpixel((params.width - 1, params.height - 1)) == (70, 80, 90, 255)
        assert image.getpixel((0, params.height - 1)) == (0, 0, 0, 255)

    def test_image_is_detached_from_the_buffer(self):
        # GIVEN
        params = RenderParameters(width=2, height=2, workers=1)
        buffer = new_pixel_buffer(params)

        # WHEN
        image = frame_to_image(buffer, params)
        buffer[0] = (255, 255, 255, 255)

        # THEN
        assert image.getpixel((0, 0)) == (0, 0, 0, 0)

    def test_highest_plane_row_is_drawn_first(self):
        # GIVEN
        params = RenderParameters(width=4, height=4, max_iterations=100, workers=2)
        viewport = Viewport(scale=1.0, center_x=0.0, center_y=1.0)

        # WHEN
        with FrameCoordinator(params, viewport) as coordinator:
            image = frame_to_image(coordinator.render_frame(), params)
            kernel = coordinator.kernel

        # THEN
        def expected(x, y):
            index = pixel_to_index(x, y, params.width, params.height)
            sample = index_to_sample(index, viewport, params.width, params.height)
            return map_color(kernel.evaluate(sample).iterations, params.max_iterations)

        top_left = expected(0, params.height - 1)
        bottom_left = expected(0, 0)
        assert top_left != bottom_left
        assert image.getpixel((0, 0)) == top_left
        assert image.getpixel((0, params.height - 1)) == bottom_left
