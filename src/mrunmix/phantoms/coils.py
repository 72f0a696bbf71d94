"""Numerical coil simulations."""

import torch
from einops import rearrange


def birdcage_2d(
    number_of_coils: int,
    image_shape: tuple[int, int],
    relative_radius: float = 1.5,
    normalize_with_rss: bool = True,
) -> torch.Tensor:
    """Numerical simulation of 2D Birdcage coil sensitivities.

    The coil elements are distributed evenly on a circle around the center of the field of
    view. Their sensitivity decays with the inverse distance, the phase follows the angle.
    This function is strongly inspired by ISMRMRD Python Tools [ISMc]_. The associated
    license information can be found at the end of this file.

    Parameters
    ----------
    number_of_coils
        number of coil elements
    image_shape
        number of pixels along x and y
    relative_radius
        radius of the birdcage relative to the field of view
    normalize_with_rss
        If set to true, the calculated sensitivities are normalized by the root-sum-of-squares

    Returns
    -------
        complex coil sensitivities `(x, y, coils)`

    References
    ----------
    .. [ISMc] ISMRMRD Python tools https://github.com/ismrmrd/ismrmrd-python-tools
    """
    n_x, n_y = image_shape
    x_co, y_co = torch.meshgrid(
        torch.arange(n_x, dtype=torch.float64) - n_x // 2,
        torch.arange(n_y, dtype=torch.float64) - n_y // 2,
        indexing='ij',
    )

    coil = torch.arange(number_of_coils, dtype=torch.float64)[:, None, None]
    coil_center_x = n_x * relative_radius * torch.cos(coil * (2 * torch.pi / number_of_coils))
    coil_center_y = n_y * relative_radius * torch.sin(coil * (2 * torch.pi / number_of_coils))
    coil_phase = -coil * (2 * torch.pi / number_of_coils)

    rr = torch.sqrt((x_co - coil_center_x) ** 2 + (y_co - coil_center_y) ** 2)
    phi = torch.arctan2(x_co - coil_center_x, -(y_co - coil_center_y)) + coil_phase
    sensitivities = (1 / rr) * torch.exp(1j * phi)

    if normalize_with_rss:
        sensitivities = sensitivities / sensitivities.abs().square().sum(0).sqrt()

    return rearrange(sensitivities.to(torch.complex64), 'coils x y -> x y coils')


# License information from https://github.com/ismrmrd/ismrmrd-python-tools

# ISMRMRD-PYTHON-TOOLS SOFTWARE LICENSE JULY 2016

# PERMISSION IS HEREBY GRANTED, FREE OF CHARGE, TO ANY PERSON OBTAINING
# A COPY OF THIS SOFTWARE AND ASSOCIATED DOCUMENTATION FILES (THE
# "SOFTWARE"), TO DEAL IN THE SOFTWARE WITHOUT RESTRICTION, INCLUDING
# WITHOUT LIMITATION THE RIGHTS TO USE, COPY, MODIFY, MERGE, PUBLISH,
# DISTRIBUTE, SUBLICENSE, AND/OR SELL COPIES OF THE SOFTWARE, AND TO
# PERMIT PERSONS TO WHOM THE SOFTWARE IS FURNISHED TO DO SO, SUBJECT TO
# THE FOLLOWING CONDITIONS:

# THE ABOVE COPYRIGHT NOTICE, THIS PERMISSION NOTICE, AND THE LIMITATION
# OF LIABILITY BELOW SHALL BE INCLUDED IN ALL COPIES OR REDISTRIBUTIONS
# OF SUBSTANTIAL PORTIONS OF THE SOFTWARE.

# SOFTWARE IS BEING DEVELOPED IN PART AT THE NATIONAL HEART, LUNG, AND BLOOD
# INSTITUTE, NATIONAL INSTITUTES OF HEALTH BY AN EMPLOYEE OF THE FEDERAL
# GOVERNMENT IN THE COURSE OF HIS OFFICIAL DUTIES. PURSUANT TO TITLE 17,
# SECTION 105 OF THE UNITED STATES CODE, THIS SOFTWARE IS NOT SUBJECT TO
# COPYRIGHT PROTECTION AND IS IN THE PUBLIC DOMAIN. EXCEPT AS CONTAINED IN
# THIS NOTICE, THE NAME OF THE AUTHORS, THE NATIONAL HEART, LUNG, AND BLOOD
# INSTITUTE (NHLBI), OR THE NATIONAL INSTITUTES OF HEALTH (NIH) MAY NOT
# BE USED TO ENDORSE OR PROMOTE PRODUCTS DERIVED FROM THIS SOFTWARE WITHOUT
# SPECIFIC PRIOR WRITTEN PERMISSION FROM THE NHLBI OR THE NIH.THE SOFTWARE IS
# PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR IMPLIED,
# INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY, FITNESS
# FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER
# IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR
# IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE SOFTWARE.
